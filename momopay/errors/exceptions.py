class AppError(Exception):
    status_code = 500
    error = "Application error"

    def __init__(self, message, status_code=None):
        super().__init__(message)
        if status_code:
            self.status_code = status_code
        self.message = message

    def to_dict(self):
        return {
            'success': False,
            'error': self.error,
            'message': self.message,
        }


class InvalidInput(AppError):
    status_code = 400
    error = "Invalid input"


class InvalidNumber(InvalidInput):
    error = "Invalid phone number"

    def __init__(self, raw, reason):
        super().__init__(f"invalid phone number {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason

    def to_dict(self):
        data = super().to_dict()
        data['details'] = {'raw': self.raw, 'reason': self.reason}
        return data


class TokenAcquisitionFailed(AppError):
    status_code = 502
    error = "Token acquisition failed"


class RequestRejected(AppError):
    status_code = 422
    error = "Request rejected"

    def __init__(self, reason, operator_status=None, reference_id=None):
        super().__init__(reason)
        self.reason = reason
        self.operator_status = operator_status
        self.reference_id = reference_id

    def to_dict(self):
        data = super().to_dict()
        data['details'] = {
            'operator_status': self.operator_status,
            'reference_id': self.reference_id,
        }
        return data


class TransientError(AppError):
    status_code = 503
    error = "Temporarily unavailable"

    def __init__(self, message, reference_id=None):
        super().__init__(message)
        self.reference_id = reference_id

    def to_dict(self):
        data = super().to_dict()
        if self.reference_id:
            data['details'] = {'reference_id': self.reference_id}
        return data


class TransportError(TransientError):
    error = "Transport error"
