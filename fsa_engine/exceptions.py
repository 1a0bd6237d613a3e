class AutomatonError(ValueError):
    """Base class for every failure raised by the automaton engine."""
    kind = 'AutomatonError'


class UnknownStateError(AutomatonError):
    kind = 'UnknownState'

    def __init__(self, state_id):
        self.state_id = state_id
        super().__init__(f"State {state_id!r} does not exist")


class RejectedTransitionError(AutomatonError):
    kind = 'RejectedTransition'

    def __init__(self, symbol):
        self.symbol = symbol
        super().__init__(f"Transition symbol must be a non-blank string, got {symbol!r}")


class NotDeterministicError(AutomatonError):
    kind = 'NotDeterministic'

    def __init__(self, message: str = "Automaton is not deterministic"):
        super().__init__(message)


class NoSingleInitialStateError(AutomatonError):
    kind = 'NoSingleInitialState'

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Automaton must have exactly one initial state, found {count}")


class NoInitialStateError(AutomatonError):
    kind = 'NoInitialState'

    def __init__(self):
        super().__init__("Automaton has no initial state")


class UnknownSymbolError(AutomatonError):
    kind = 'UnknownSymbol'

    def __init__(self, symbol: str, position: int):
        self.symbol = symbol
        self.position = position
        super().__init__(f"Symbol '{symbol}' at position {position} is not in the alphabet")


class MalformedSnapshotError(AutomatonError):
    kind = 'MalformedSnapshot'

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed automaton snapshot: {reason}")
