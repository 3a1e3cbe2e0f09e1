import re

NAME_PREFIX_MAX = 40

# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def _slug(s: str) -> str:
    s = (s or "").strip().lower().rstrip(".")
    s = re.sub(r"[^a-z0-9-]", "-", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    # Lambda function names cap at 64 chars; leave room for the trigger suffix
    return s[:NAME_PREFIX_MAX].rstrip("-")


def stack_name_prefix(base: str, stack: str) -> str:
    """
    Slug "<base>-<stack>" within NAME_PREFIX_MAX chars. Only the base part is
    shortened, so stacks of one project never share resource names.

      ("passwordless-authentication-backend-service", "prod")
        -> "passwordless-authentication-backend-prod"
    """
    base_part = _slug(base)
    stack_part = _slug(stack)
    if not base_part:
        return ""
    room = NAME_PREFIX_MAX - len(stack_part) - 1
    base_part = base_part[:max(room, 0)].rstrip("-")
    return "-".join(p for p in (base_part, stack_part) if p)


def csv_values(raw: str | None) -> list[str]:
    """
    Split a comma separated config value into lower-cased, non-empty items.

      "Example.com, corp.example.com," -> ["example.com", "corp.example.com"]
    """
    return [v.strip().lower() for v in (raw or "").split(",") if v.strip()]


def lambda_log_group_name(function_name: str) -> str:
    return f"/aws/lambda/{function_name}"
