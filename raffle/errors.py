class RaffleError(Exception):
    pass


class ConfigError(RaffleError):
    pass


class DeploymentError(RaffleError):
    pass


class VerificationError(RaffleError):
    pass


class ContractRevert(RaffleError):
    """A transaction or call reverted.

    ``reason`` is the custom error name (``Raffle__NotOpen``) or the revert
    string (``nonexistent request``); ``params`` holds the error arguments.
    """

    def __init__(self, reason, *params):
        self.reason = reason
        self.params = params
        if params:
            message = f"{reason}({', '.join(str(p) for p in params)})"
        else:
            message = reason
        super().__init__(f"reverted with reason '{message}'")
