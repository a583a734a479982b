"""
Domain-specific errors for the brokerage bounded context.

All errors raised from the domain and application layers must be
defined here. These are mapped to HTTP responses at the interface
layer. No framework imports allowed.
"""


class BrokerageDomainError(Exception):
    """Base error for all brokerage domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class EntityNotFoundError(BrokerageDomainError):
    """Raised when a record does not exist or is outside the caller's reach."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class AuthenticationRequiredError(BrokerageDomainError):
    """Raised when a request has no valid client or admin session."""

    def __init__(self, realm: str = "client") -> None:
        super().__init__(f"{realm.capitalize()} authentication required")
        self.realm = realm


class InvalidCredentialsError(BrokerageDomainError):
    """Raised on a failed sign-in. Never says which part was wrong."""

    def __init__(self, login_field: str = "email") -> None:
        super().__init__(f"Invalid {login_field} or password")
        self.login_field = login_field


class PermissionDeniedError(BrokerageDomainError):
    """Raised when an admin's role does not allow an operation."""

    def __init__(self, required_role: str) -> None:
        super().__init__(f"Operation requires role: {required_role}")
        self.required_role = required_role


class EmailAlreadyRegisteredError(BrokerageDomainError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")
        self.email = email


class DuplicateAdminError(BrokerageDomainError):
    """Raised when an admin username or email is already taken."""

    def __init__(self, field_name: str, value: str) -> None:
        super().__init__(f"Admin {field_name} already exists: {value}")
        self.field_name = field_name
        self.value = value


class ValidationError(BrokerageDomainError):
    """Raised when a business rule rejects otherwise well-formed input."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidAmountError(BrokerageDomainError):
    """Raised when an amount is non-positive or below the allowed minimum."""

    def __init__(self, amount: str, minimum: str | None = None) -> None:
        if minimum is not None:
            message = f"Invalid amount {amount}: minimum is {minimum}"
        else:
            message = f"Invalid amount {amount}: must be greater than zero"
        super().__init__(message)
        self.amount = amount
        self.minimum = minimum


class InsufficientBalanceError(BrokerageDomainError):
    """Raised when a trading account cannot cover a debit."""

    def __init__(self, account_id: str, required: str, available: str) -> None:
        super().__init__(
            f"Insufficient balance: required {required}, available {available}"
        )
        self.account_id = account_id
        self.required = required
        self.available = available


class AccountOwnershipError(BrokerageDomainError):
    """Raised when a trading account does not belong to the expected client."""

    def __init__(self, account_id: str, user_id: str) -> None:
        super().__init__(f"Account {account_id} does not belong to user {user_id}")
        self.account_id = account_id
        self.user_id = user_id


class AccountDisabledError(BrokerageDomainError):
    """Raised when a disabled client or trading account is used."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} is disabled: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStatusTransitionError(BrokerageDomainError):
    """Raised when a record is not in a state that allows the requested action."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(f"Cannot move {entity} from {current} to {target}")
        self.entity = entity
        self.current = current
        self.target = target


class SchemaBootstrapError(BrokerageDomainError):
    """Raised when the runtime schema bootstrap fails for a non-duplicate reason."""

    def __init__(self, statement: str, reason: str) -> None:
        super().__init__(f"Schema bootstrap failed on {statement}: {reason}")
        self.statement = statement
        self.reason = reason
