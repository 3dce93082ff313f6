"""
Error taxonomy shared by the route layer.
Each error knows the HTTP status it is reported with.
"""


class MarketplaceError(Exception):
    status_code = 500
    default_message = 'Unexpected server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MarketplaceError):
    """Missing or malformed input"""
    status_code = 400
    default_message = 'Invalid request.'


class AuthError(MarketplaceError):
    """Missing, invalid or insufficient session"""
    status_code = 401
    default_message = 'Authentication required.'


class NotFoundError(MarketplaceError):
    status_code = 404
    default_message = 'Not found.'


class GatewayError(MarketplaceError):
    """A contract call failed or reverted"""
    status_code = 500
    default_message = 'Contract call failed.'


class GatewayUnavailableError(GatewayError):
    """The blockchain node did not answer within the timeout"""
    default_message = 'Contract gateway unavailable.'


class UnexpectedError(MarketplaceError):
    pass
