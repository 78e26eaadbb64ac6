"""
sort-channels - keeps a Discord server's text channels in natural sort order

The bot listens for structural changes (channel created, channel updated,
guild joined) and reorders a guild's text channels so that their visual order
matches the natural sort order of their names ("general-2" before "general-10").

Core Components:

- **Ordering**: pure natural-sort computation of the minimal set of position edits
- **Lock registry**: per-guild gate that keeps reconciliation passes from overlapping
- **Reconciliation handler**: fetch, order and apply one pass for one guild
- **Prefix cache**: per-guild command prefix, read-through/write-through to SQLite
- **Dispatcher**: routes the closed set of gateway events and text commands

Usage:
    from sortchannels.main import main
    main()
"""
