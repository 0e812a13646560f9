"""Docs preview PR comments: banner rendering and sticky comment upkeep."""
