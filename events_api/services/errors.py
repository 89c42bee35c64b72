class ServiceError(Exception):
    pass


class NotFoundError(ServiceError):
    pass


class ForbiddenError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class AlreadyJoinedError(ConflictError):
    pass


class JoinInProgressError(ConflictError):
    pass


class InvalidInputError(ServiceError):
    pass


class InvalidAmountError(InvalidInputError):
    pass


class PaymentProcessorError(ServiceError):
    pass
