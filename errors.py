class EmbeddingError(Exception):
    pass


class InvalidConfiguration(EmbeddingError, ValueError):
    pass


class DimensionMismatch(EmbeddingError, ValueError):
    pass


class NumericalFailure(EmbeddingError, ArithmeticError):
    def __init__(self, msg, itr=None):
        super().__init__(msg)
        # iteration at which the embedding stopped being finite
        self.itr = itr
