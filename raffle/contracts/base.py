import re

from raffle.errors import ContractRevert

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def python_name(method):
    """``getLatestTimeStamp`` -> ``get_latest_time_stamp``"""
    return _CAMEL.sub("_", method).lower()


class LocalContract:
    """Base for contracts deployed on the development chain.

    Public methods are the ABI functions in snake_case and take the call's
    :class:`~raffle.chain.Msg` first. State lives in ``self.storage`` so the
    chain can snapshot and roll it back.
    """

    NAME = None

    def __init__(self, chain, address):
        self.chain = chain
        self.address = address

    @property
    def storage(self):
        return self.chain.storage(self.address)

    @property
    def balance(self):
        return self.chain.balance_of(self.address)

    @property
    def functions(self):
        from raffle.contracts import load_abi

        return {item["name"] for item in load_abi(self.NAME) if item["type"] == "function"}

    def constructor(self, msg, *args):
        pass

    def dispatch(self, msg, method, args):
        if method not in self.functions:
            self.revert(f"function selector was not recognized and there's no fallback function ({self.NAME}.{method})")
        return getattr(self, python_name(method))(msg, *args)

    def emit(self, event, **args):
        self.chain.emit(self.address, event, **args)

    @staticmethod
    def revert(reason, *params):
        raise ContractRevert(reason, *params)
