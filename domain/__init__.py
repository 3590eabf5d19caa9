"""Describes the Green FC lunch domain. Centres around picking one menu item.

Why is this (a little) hard?

- A pick is either a cosmetic spin or a call out to a language model that may be
  slow, wrong or down.
- The model is told to answer with a menu name but nothing makes it. Names get
  looked up in the catalog before anyone believes them.
- Only one pick runs at a time. Starting another cancels the old one.

The order ledger is the easy bit. Counts are never zero or negative.
"""
