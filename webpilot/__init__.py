"""
webpilot
========

A goal-driven browser agent. A reasoning engine picks one action at a time,
a policy guard vets it, an executor performs it on a Playwright page, and the
observed result feeds the next decision.

Agent Loop: Observe → Plan → Guard → Act → Record → Repeat
"""

__version__ = "0.1.0"
