"""Taskboard: Kanban board over a live collection store."""
