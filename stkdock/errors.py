"""Exception hierarchy for provisioning runs.

Every fatal failure is raised as a ``ProvisionError`` subclass whose ``stage``
names the step that failed, so callers can tell configuration, provider,
connection, transmission and termination failures apart.
"""


class ProvisionError(Exception):
    """Base error for a provisioning run."""

    stage = "provision"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ConfigError(ProvisionError):
    """Missing or invalid configuration, or unreadable/malformed key material."""

    stage = "config"


class ProviderError(ProvisionError):
    """The compute driver failed to create the node."""

    stage = "create"

    def __init__(self, message, request=None):
        super().__init__(message)
        self.request = request

    def __str__(self):
        if self.request is None:
            return self.message
        return f"{self.message} (request: name={self.request.name} region={self.request.region} sku={self.request.sku})"


class ConnectionStageError(ProvisionError):
    """Base for failures while reaching the node and opening the shell."""

    stage = "connect"


class ReadinessTimeout(ConnectionStageError):
    """The node never accepted a connection within the readiness window."""

    stage = "readiness"

    def __init__(self, message, last_error=None):
        super().__init__(message)
        self.last_error = last_error


class DialError(ConnectionStageError):
    """TCP connect or SSH handshake failed."""

    stage = "dial"


class AuthenticationError(ConnectionStageError):
    """The node rejected the key, or its host key was not trusted."""

    stage = "auth"


class SessionOpenError(ConnectionStageError):
    """The session channel (and its stdio pipes) could not be opened."""

    stage = "session"


class ShellStartError(ConnectionStageError):
    """The node refused the interactive shell request."""

    stage = "shell"


class TransmissionError(ProvisionError):
    """Writing a command line to the session's stdin failed."""

    stage = "transmit"

    def __init__(self, message, line=None):
        super().__init__(message)
        self.line = line


class TerminationError(ProvisionError):
    """The remote shell exited unsuccessfully."""

    stage = "wait"

    def __init__(self, message, exit_status=None, exit_signal=None):
        super().__init__(message)
        self.exit_status = exit_status
        self.exit_signal = exit_signal
