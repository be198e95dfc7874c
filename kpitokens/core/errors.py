"""
KPI Tokens error taxonomy.

Every failure raised by a contract operation derives from KPITokensError.
Each class carries a stable `code` so callers (CLI, reports, tests) can
match on it without depending on message text.
"""


class KPITokensError(Exception):
    code = "KPI_TOKENS_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


# -------------------------------------------------
# NULL ADDRESSES
# -------------------------------------------------
class ZeroAddressError(KPITokensError):
    code = "ZERO_ADDRESS"


class ZeroAddressCollateralToken(ZeroAddressError):
    code = "ZERO_ADDRESS_COLLATERAL_TOKEN"


class ZeroAddressOracle(ZeroAddressError):
    code = "ZERO_ADDRESS_ORACLE"


class ZeroAddressFeeReceiver(ZeroAddressError):
    code = "ZERO_ADDRESS_FEE_RECEIVER"


class ZeroAddressArbitrator(ZeroAddressError):
    code = "ZERO_ADDRESS_ARBITRATOR"


class ZeroAddressKpiTokenImplementation(ZeroAddressError):
    code = "ZERO_ADDRESS_KPI_TOKEN_IMPLEMENTATION"


class ZeroAddressTemplate(ZeroAddressError):
    code = "ZERO_ADDRESS_TEMPLATE"


# -------------------------------------------------
# INPUT VALIDATION
# -------------------------------------------------
class InvalidAmount(KPITokensError):
    code = "INVALID_AMOUNT"


class InvalidMetadata(KPITokensError):
    code = "INVALID_METADATA"


class InvalidExpiry(KPITokensError):
    code = "INVALID_EXPIRY"


class InvalidBounds(KPITokensError):
    code = "INVALID_BOUNDS"


class InvalidFee(KPITokensError):
    code = "INVALID_FEE"


class InvalidTimeout(KPITokensError):
    code = "INVALID_TIMEOUT"


class InvalidSpecification(KPITokensError):
    code = "INVALID_SPECIFICATION"


# -------------------------------------------------
# BALANCE LEDGER
# -------------------------------------------------
class InsufficientBalance(KPITokensError):
    code = "INSUFFICIENT_BALANCE"


class InsufficientAllowance(KPITokensError):
    code = "INSUFFICIENT_ALLOWANCE"


# -------------------------------------------------
# SETTLEMENT STATE MACHINE
# -------------------------------------------------
class NotYetFinalized(KPITokensError):
    code = "NOT_YET_FINALIZED"


class AlreadyFinalized(KPITokensError):
    code = "ALREADY_FINALIZED"


class NotFinalized(KPITokensError):
    code = "NOT_FINALIZED"


class NoBalance(KPITokensError):
    code = "NO_BALANCE"


class AlreadyInitialized(KPITokensError):
    code = "ALREADY_INITIALIZED"


# -------------------------------------------------
# TEMPLATES
# -------------------------------------------------
class UnknownTemplate(KPITokensError):
    code = "UNKNOWN_TEMPLATE"


class NonIncreasingVersion(KPITokensError):
    code = "NON_INCREASING_VERSION"


# -------------------------------------------------
# ACCESS / RUNTIME
# -------------------------------------------------
class Unauthorized(KPITokensError):
    code = "UNAUTHORIZED"


class AddressInUse(KPITokensError):
    code = "ADDRESS_IN_USE"


class UnknownContract(KPITokensError):
    code = "UNKNOWN_CONTRACT"


# -------------------------------------------------
# ORACLE (question arbitration)
# -------------------------------------------------
class OracleError(KPITokensError):
    code = "ORACLE_ERROR"


class QuestionAlreadyExists(OracleError):
    code = "QUESTION_ALREADY_EXISTS"


class UnknownQuestion(OracleError):
    code = "UNKNOWN_QUESTION"


class AnswerTooSoon(OracleError):
    code = "ANSWER_TOO_SOON"


class QuestionAlreadyFinalized(OracleError):
    code = "QUESTION_ALREADY_FINALIZED"


class InsufficientBond(OracleError):
    code = "INSUFFICIENT_BOND"
