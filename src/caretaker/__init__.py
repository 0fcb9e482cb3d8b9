"""
Caretaker - rule-based Discord moderation bot

Caretaker watches every guild message with a fixed set of detection rules
("modules") and runs the remediation each guild configured for a match.

Core Components:
- **dispatch**: Message broadcast, one matcher runner task per module kind,
  and the action pipeline behind a bounded queue
- **matchers**: The detection rules (mass ping, crosspost, invite links, ...)
- **modules**: Typed per-module settings and the enabled-flag cache
- **services**: ModuleService, the interface to module configuration
- **database** / **repositories**: SQLite persistence through aiosqlite
- **cog**: Discord event listener and the /module slash commands
"""
