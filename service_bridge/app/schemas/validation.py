"""
Shared field types and payload parsing for bridge request schemas.
"""

import math
import re
from typing import Any, Dict, List, Tuple, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    PlainValidator,
    StringConstraints,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError
from typing_extensions import Annotated

from shared.errors import ValidationError

UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
DECIMAL_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")

ROOT_ISSUE_PATH = "_root"


def _check_uuid(value: str) -> str:
    if not UUID_RE.fullmatch(value):
        raise ValueError("must be a UUID")
    return value


def _check_decimal(value: str) -> str:
    if not DECIMAL_RE.fullmatch(value):
        raise ValueError("must be a decimal string")
    return value


_AWARE_DATETIME = TypeAdapter(AwareDatetime)


def _check_offset_timestamp(value: str) -> str:
    candidate = value.strip()
    if "T" not in candidate.upper():
        raise ValueError("must be an ISO-8601 timestamp with offset")
    try:
        _AWARE_DATETIME.validate_python(candidate)
    except PydanticValidationError:
        raise ValueError("must be an ISO-8601 timestamp with offset") from None
    # Forwarded as received; only the format is checked.
    return value


def _finite_number(value: Any) -> Union[int, float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    if not math.isfinite(value):
        raise ValueError("must be finite")
    return value


def _non_negative_number(value: Any) -> Union[int, float]:
    value = _finite_number(value)
    if value < 0:
        raise ValueError("must be greater than or equal to 0")
    return value


def _amount(minimum_exclusive: bool):
    def validate(value: Any) -> Union[int, float, str]:
        if isinstance(value, str):
            return _check_decimal(value)
        value = _finite_number(value)
        if minimum_exclusive and value <= 0:
            raise ValueError("must be greater than 0")
        if value < 0:
            raise ValueError("must be greater than or equal to 0")
        return value
    return validate


NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
Uuid = Annotated[str, AfterValidator(_check_uuid)]
DecimalStr = Annotated[str, StringConstraints(min_length=1), AfterValidator(_check_decimal)]
OffsetTimestamp = Annotated[str, AfterValidator(_check_offset_timestamp)]
NonNegativeNumber = Annotated[Union[int, float], PlainValidator(_non_negative_number)]
NonNegativeAmount = Annotated[Union[int, float, str], PlainValidator(_amount(minimum_exclusive=False))]
PositiveAmount = Annotated[Union[int, float, str], PlainValidator(_amount(minimum_exclusive=True))]


class BrokerageRequest(BaseModel):
    """Partner identifiers every brokerage operation carries."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    account_id: Uuid = Field(alias="accountId")
    user_id: NonEmptyStr = Field(alias="userId")
    user_secret: NonEmptyStr = Field(alias="userSecret")

    def cross_field_issues(self) -> List[Tuple[str, str]]:
        """(path, message) pairs for rules spanning several fields."""
        return []

    @property
    def limiter_key(self) -> str:
        return f"{self.account_id}:{self.user_id}"


M = TypeVar("M", bound=BrokerageRequest)


def issues_from_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Group pydantic error dicts by dotted field path."""
    issues: Dict[str, List[str]] = {}
    for error in errors:
        path = ".".join(str(part) for part in error.get("loc", ())) or ROOT_ISSUE_PATH
        issues.setdefault(path, []).append(error.get("msg", "Invalid value"))
    return issues


def parse_payload(model: Type[M], raw: Any) -> M:
    """
    Validate ``raw`` against ``model``.

    Field-level checks run first; cross-field rules only run on a payload that
    passed them, and every violated rule is reported at once. Raises
    :class:`shared.errors.ValidationError` carrying the issues map.
    """
    try:
        payload = model.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(issues_from_errors(exc.errors())) from None

    issues: Dict[str, List[str]] = {}
    for path, message in payload.cross_field_issues():
        issues.setdefault(path, []).append(message)
    if issues:
        raise ValidationError(issues)
    return payload
