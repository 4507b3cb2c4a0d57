"""todo-goblin: hand backlog tasks to an AI coding agent, one isolated attempt per run."""

__version__ = "0.1.0"
