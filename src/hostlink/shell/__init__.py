"""Shell command execution for hostlink."""

from hostlink.shell.executor import ShellExecutor, SubprocessShellExecutor

__all__ = ["ShellExecutor", "SubprocessShellExecutor"]
