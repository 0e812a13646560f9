#!/usr/bin/env python3

"""Render the docs preview PR comment markdown."""

from docs_preview.render_comment import main

if __name__ == "__main__":
    raise SystemExit(main())
