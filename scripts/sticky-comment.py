#!/usr/bin/env python3

"""Create, update, hide or delete the sticky docs preview PR comment."""

from docs_preview.sticky_comment import main

if __name__ == "__main__":
    raise SystemExit(main())
