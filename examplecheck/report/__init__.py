from .reporter import ConsoleReporter, RunSummary, exit_code, relative_path, summarize

__all__ = ["ConsoleReporter", "RunSummary", "exit_code", "relative_path", "summarize"]
