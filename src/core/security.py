import re
import secrets
import string
from dataclasses import dataclass, field

from email_validator import EmailNotValidError, validate_email
from pwdlib.hashers.bcrypt import BcryptHasher

from core.config import settings

# --- 패스워드 해싱 ---
# pwdlib은 passlib의 후속 라이브러리 (Python 3.14+ 호환)
# bcrypt: 의도적으로 느린 해시 → 브루트포스 공격에 강함
# rounds(work factor)는 설정값으로 고정하고, 로그인 시 should_rehash로 재확인한다.
pwd_hash = BcryptHasher(rounds=settings.BCRYPT_ROUNDS)


def hash_password(plain: str) -> str:
    """평문 패스워드 → bcrypt 해시 (salt는 해시 문자열에 포함)."""
    return pwd_hash.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """평문과 해시를 비교한다.

    비교 자체는 bcrypt가 상수 시간으로 수행한다.
    해시 문자열이 깨져 있어도 예외 대신 False를 반환한다.
    """
    if not plain or not hashed:
        return False
    try:
        return pwd_hash.verify(plain, hashed)
    except ValueError:
        return False


def should_rehash(hashed: str) -> bool:
    """해시의 알고리즘/work factor가 현재 설정과 다르면 True.

    파싱할 수 없는 해시도 다시 만들어야 하므로 True.
    """
    try:
        return pwd_hash.check_needs_rehash(hashed)
    except (ValueError, IndexError):
        return True


# --- 패스워드 강도 ---

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

_RULE_MESSAGES = {
    "TOO_SHORT": f"패스워드는 최소 {MIN_PASSWORD_LENGTH}자 이상이어야 합니다",
    "NO_UPPERCASE": "대문자를 포함해야 합니다",
    "NO_LOWERCASE": "소문자를 포함해야 합니다",
    "NO_NUMBERS": "숫자를 포함해야 합니다",
    "NO_SPECIAL_CHARS": "특수문자를 포함해야 합니다",
}


@dataclass
class PasswordStrength:
    is_valid: bool
    failed_rules: list[str] = field(default_factory=list)
    score: int = 0

    @property
    def message(self) -> str | None:
        if self.is_valid:
            return None
        rules = ", ".join(_RULE_MESSAGES[rule] for rule in self.failed_rules)
        return f"{rules} (강도 {self.score}/100)"


def validate_password_strength(plain: str) -> PasswordStrength:
    """길이 8 이상 + 대문자/소문자/숫자/특수문자를 모두 요구한다."""
    failed = []
    if len(plain) < MIN_PASSWORD_LENGTH:
        failed.append("TOO_SHORT")
    if not re.search(r"[A-Z]", plain):
        failed.append("NO_UPPERCASE")
    if not re.search(r"[a-z]", plain):
        failed.append("NO_LOWERCASE")
    if not re.search(r"\d", plain):
        failed.append("NO_NUMBERS")
    if not _SPECIAL_RE.search(plain):
        failed.append("NO_SPECIAL_CHARS")
    return PasswordStrength(
        is_valid=not failed, failed_rules=failed, score=password_strength_score(plain)
    )


def password_strength_score(plain: str) -> int:
    """0-100 사이의 패스워드 강도 점수 (UI 표시용)."""
    score = 0
    for threshold in (8, 12, 16):
        if len(plain) >= threshold:
            score += 10
    for pattern in (r"[a-z]", r"[A-Z]", r"\d"):
        if re.search(pattern, plain):
            score += 15
    if _SPECIAL_RE.search(plain):
        score += 15
    if plain and len(set(plain)) >= len(plain) * 0.7:
        score += 10
    return min(score, 100)


def generate_random_password(length: int = 12) -> str:
    """강도 규칙을 항상 만족하는 랜덤 패스워드를 만든다."""
    length = max(length, MIN_PASSWORD_LENGTH)
    rng = secrets.SystemRandom()
    required = [
        rng.choice(string.ascii_uppercase),
        rng.choice(string.ascii_lowercase),
        rng.choice(string.digits),
        rng.choice(SPECIAL_CHARACTERS),
    ]
    pool = string.ascii_letters + string.digits + SPECIAL_CHARACTERS
    chars = required + [rng.choice(pool) for _ in range(length - len(required))]
    rng.shuffle(chars)
    return "".join(chars)


# --- 세션 토큰 ---
# 32바이트(256bit) 난수 → 64자 hex. 서버에 저장되는 불투명 식별자일 뿐
# 서명이나 payload는 없다.
SESSION_TOKEN_BYTES = 32


def generate_session_token() -> str:
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def token_preview(token: str | None) -> str:
    """로그용: 토큰 앞 8자만 노출."""
    if not token:
        return "-"
    return f"{token[:8]}…"


# --- 입력 형식 검증 ---

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,20}$")


def is_valid_email(value: str) -> bool:
    """email-validator 문법 검사. 가입 흐름에서 DNS 조회는 하지 않는다."""
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def is_valid_username(value: str) -> bool:
    return bool(_USERNAME_RE.match(value or ""))
