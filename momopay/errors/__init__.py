from momopay.errors.exceptions import (
    AppError,
    InvalidInput,
    InvalidNumber,
    TokenAcquisitionFailed,
    RequestRejected,
    TransientError,
    TransportError,
)

__all__= [
    'AppError',
    'InvalidInput',
    'InvalidNumber',
    'TokenAcquisitionFailed',
    'RequestRejected',
    'TransientError',
    'TransportError',
]
