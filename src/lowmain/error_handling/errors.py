"""
Error taxonomy and classification for lowmain commands.

Every failure a command can report is one of nine kinds. Each kind has a
stable code, a retry flag and a remediation hint (``fix``) so a calling
agent can branch on ``code`` and ``retryable`` without reading messages.

Kinds raised by command logic (fail fast, before any network call):
    - InvalidParams
    - ConnectionNotConfigured
    - NodeNotFound / RelationshipNotFound (zero-row post-conditions)

Kinds produced by classify_error() from driver failures:
    - AuthenticationFailed
    - CypherSyntaxError
    - ConstraintViolation
    - ConnectionFailed (the only retryable kind)
    - QueryFailed (catch-all)
"""

from typing import Tuple, Type


CLI_NAME = "lowmain"


class LowmainError(Exception):
    """
    Base class of all classified errors.

    Attributes:
        code: Stable machine-readable error code
        retryable: Whether retrying the same command may succeed
        detail: Upstream or validation detail embedded in the message
    """

    code: str = "QUERY_FAILED"
    retryable: bool = False
    title: str = "Query failed"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if not self.detail:
            return self.title
        return f"{self.title}: {self.detail}"

    @property
    def fix(self) -> str:
        return f"Check the query and parameters. Run `{CLI_NAME} schema` to explore the database"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, detail={self.detail!r})"


class ConnectionFailed(LowmainError):
    code = "CONNECTION_FAILED"
    retryable = True
    title = "Connection failed"

    @property
    def fix(self) -> str:
        return "Check that Neo4j is running and the URI is correct. Default: bolt://localhost:7687"


class AuthenticationFailed(LowmainError):
    code = "AUTH_FAILED"
    title = "Authentication failed"

    @property
    def fix(self) -> str:
        return "Check NEO4J_USER and NEO4J_PASSWORD, or pass --user and --password"


class CypherSyntaxError(LowmainError):
    code = "CYPHER_SYNTAX_ERROR"
    title = "Cypher syntax error"

    @property
    def fix(self) -> str:
        return f"Check Cypher syntax. Run `{CLI_NAME} schema` to see available labels and types"


class ConstraintViolation(LowmainError):
    code = "CONSTRAINT_VIOLATION"
    title = "Constraint violation"

    @property
    def fix(self) -> str:
        return f"Check `{CLI_NAME} schema constraints` for active constraints"


class QueryFailed(LowmainError):
    code = "QUERY_FAILED"
    title = "Query failed"


class NodeNotFound(LowmainError):
    code = "NODE_NOT_FOUND"
    title = "Node not found"

    @property
    def fix(self) -> str:
        return f"No node with ID {self.detail}. Run `{CLI_NAME} node find` to list nodes"


class RelationshipNotFound(LowmainError):
    code = "REL_NOT_FOUND"
    title = "Relationship not found"

    @property
    def fix(self) -> str:
        return f"No relationship with ID {self.detail}. Run `{CLI_NAME} rel find` to list relationships"


class ConnectionNotConfigured(LowmainError):
    code = "CONNECTION_NOT_CONFIGURED"
    title = "Connection not configured"

    def __init__(self, detail: str = "NEO4J_PASSWORD is required"):
        super().__init__(detail)

    @property
    def fix(self) -> str:
        return (
            "Set NEO4J_PASSWORD env var or pass --password. "
            f"Example: NEO4J_PASSWORD=secret {CLI_NAME} ping"
        )


class InvalidParams(LowmainError):
    code = "INVALID_PARAMS"
    title = "Invalid parameters"

    @property
    def fix(self) -> str:
        return "Check parameter format. --params expects a JSON object, --props expects a JSON object"


ERROR_KINDS: Tuple[Type[LowmainError], ...] = (
    ConnectionFailed,
    AuthenticationFailed,
    CypherSyntaxError,
    ConstraintViolation,
    QueryFailed,
    NodeNotFound,
    RelationshipNotFound,
    ConnectionNotConfigured,
    InvalidParams,
)

# Match order is part of the contract: first hit wins.
CLASSIFICATION_RULES: Tuple[Tuple[Tuple[str, ...], Type[LowmainError]], ...] = (
    (("authentication", "Unauthorized", "credentials"), AuthenticationFailed),
    (("SyntaxError", "Invalid input"), CypherSyntaxError),
    (("ConstraintValidationFailed", "already exists"), ConstraintViolation),
    (("connection", "Connection", "refused", "ServiceUnavailable"), ConnectionFailed),
)


def describe_error(error: BaseException) -> str:
    """
    Build the text the classifier matches against.

    Combines the structured view the neo4j driver exposes (exception class
    name and Neo4j status code such as ``Neo.ClientError.Statement.SyntaxError``)
    with the error message.
    """
    parts = [type(error).__name__]
    code = getattr(error, "code", None)
    if isinstance(code, str) and code:
        parts.append(code)
    message = str(error)
    if message:
        parts.append(message)
    return " ".join(parts)


def classify_error(error: BaseException) -> LowmainError:
    """
    Map a driver failure onto the error taxonomy.

    Pure and total: the same upstream error always yields the same kind.
    Errors that are already classified are returned unchanged.

    Args:
        error: Exception raised by the neo4j driver (or any exception)

    Returns:
        A LowmainError instance carrying the upstream message as detail

    Example:
        >>> err = classify_error(OSError("Connection refused"))
        >>> err.code, err.retryable
        ('CONNECTION_FAILED', True)
    """
    if isinstance(error, LowmainError):
        return error

    description = describe_error(error)
    detail = str(error) or type(error).__name__
    for markers, kind in CLASSIFICATION_RULES:
        if any(marker in description for marker in markers):
            return kind(detail)
    return QueryFailed(detail)
