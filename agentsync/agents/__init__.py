"""Agent catalogue: the supported coding agents and their on-disk layouts.

Each agent is described declaratively (paths relative to a project
directory plus capability flags). Sync, drift and autodetection all
work off these descriptors, so adding an agent means
adding one entry to :data:`agentsync.agents.registry.AGENTS`.
"""
