"""Console preview of the receptionist bot."""

import sys

from receptionist_core.api.service import ChatPreview
from receptionist_core.domain.profile import DEFAULT_PROFILE, load_profile

if __name__ == "__main__":
    profile = load_profile(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_PROFILE
    preview = ChatPreview(profile)
    print("Bot:", preview.simulate().text)
    for line in sys.stdin:
        printed = 0
        before = len(preview.messages)
        print("Bot: ", end="", flush=True)
        for text in preview.send_stream(line.rstrip("\n")):
            print(text[printed:], end="", flush=True)
            printed = len(text)
        last = preview.messages[-1]
        if len(preview.messages) > before and last.is_error:
            print(last.text, end="")
        print()
