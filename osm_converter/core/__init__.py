"""Core tokenizing, assembly and intermediate representation modules.

WHY: The core package contains the stable heart of the converter —
the markup tokenizer, the element IR and the assembly state machine.
These are consumed by all formatters and must remain backward-compatible.

HOW: markup.py turns one line into a Markup token, ir.py defines the
element dataclasses, assembler.py builds them from tokens, source.py
supplies lines from plain or compressed dumps, errors.py holds the
exception hierarchy.

RULES:
- IR dataclasses are the contract — change with care
- Assembly logic is format-agnostic — no formatter-specific logic here
- The tokenizer knows nothing about nodes, ways or relations
"""
