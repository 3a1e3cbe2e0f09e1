#!/usr/bin/env python3
from __future__ import annotations

import argparse
import re
import subprocess
from pathlib import Path

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def repo_root_from_scripts_dir() -> Path:
    return Path(__file__).resolve().parents[1]


def project_slug(name: str) -> str:
    s = (name or "").strip().lower()
    s = re.sub(r"[^a-z0-9-]+", "-", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    if not s:
        raise ValueError(f"Could not derive a project name from: '{name}'")
    return s


def prompt_with_default(label: str, default: str, explain: str = "") -> str:
    if explain:
        print(explain)
    v = input(f"{label} [{default}]: ").strip()
    return v if v else default


def prompt_required(label: str, example: str, explain: str = "") -> str:
    if explain:
        print(explain)
    while True:
        v = input(f"{label} (e.g. {example}): ").strip()
        if v:
            return v


def write_text(path: Path, content: str, force: bool) -> bool:
    if path.exists() and not force:
        return False
    path.write_text(content, encoding="utf-8", newline="\n")
    return True


def build_pulumi_project_yaml(project_name: str) -> str:
    lines: list[str] = []
    lines.append(f"name: {project_name}")
    lines.append("description: Passwordless authentication backend (Cognito custom auth)")
    lines.append("runtime:")
    lines.append("  name: python")
    lines.append("  options:")
    lines.append("    toolchain: pip")
    lines.append("    virtualenv: .venv")
    lines.append("")
    return "\n".join(lines)


def _yaml_quote(s: str) -> str:
    return '"' + s.replace("\\", "\\\\").replace('"', '\\"') + '"'


def build_sorted_config_yaml(values: dict[str, str], comments: dict[str, str]) -> str:
    lines: list[str] = ["config:"]
    for key in sorted(values.keys()):
        if key in comments:
            lines.append(f"  # {comments[key]}")
        lines.append(f"  {key}: {values[key]}")
    lines.append("")
    return "\n".join(lines)


def build_stack_yaml(prefix: str, values: dict[str, str]) -> str:
    comments = {
        "aws:profile": "AWS CLI profile used by the Pulumi AWS provider",
        "aws:region": "AWS region for this stack",
        f"{prefix}:targetRegion": "Region the user pool and trigger functions are deployed to",
        f"{prefix}:sourceEmail": "SES sender address for sign-in codes (required)",
        f"{prefix}:originationNumber": "SMS origination number, E.164 (required only for US destinations)",
        f"{prefix}:pinpointApplicationId": "Existing Pinpoint app id; omit to create one",
        f"{prefix}:preferredChannel": "Channel used when a user has both email and phone (email|sms)",
        f"{prefix}:maxChallengeAttempts": "Wrong answers allowed before the sign-in attempt fails",
        f"{prefix}:codeLength": "Digits in each one-time code",
        f"{prefix}:hasuraClaims": "Add Hasura JWT claims to ID tokens",
        f"{prefix}:autoConfirmUsers": "Confirm new users at sign-up",
        f"{prefix}:logRetentionDays": "CloudWatch log retention (days)",
    }
    return build_sorted_config_yaml(values, comments)


def stack_values(
    prefix: str,
    *,
    region: str,
    profile: str,
    source_email: str,
    origination_number: str,
    pinpoint_application_id: str,
    preferred_channel: str,
) -> dict[str, str]:
    if not EMAIL_RE.match(source_email):
        raise ValueError(f"sourceEmail does not look like an email address: '{source_email}'")
    if preferred_channel not in ("email", "sms"):
        raise ValueError(f"preferredChannel must be email or sms, got '{preferred_channel}'")

    values = {
        "aws:profile": profile,
        "aws:region": region,
        f"{prefix}:targetRegion": region,
        f"{prefix}:sourceEmail": source_email,
        f"{prefix}:preferredChannel": preferred_channel,
        f"{prefix}:maxChallengeAttempts": _yaml_quote("3"),
        f"{prefix}:codeLength": _yaml_quote("6"),
        f"{prefix}:hasuraClaims": _yaml_quote("false"),
        f"{prefix}:autoConfirmUsers": _yaml_quote("true"),
        f"{prefix}:logRetentionDays": _yaml_quote("7"),
    }
    # Unset keys stay out of the file so the program sees them as unconfigured
    if origination_number:
        values[f"{prefix}:originationNumber"] = _yaml_quote(origination_number)
    if pinpoint_application_id:
        values[f"{prefix}:pinpointApplicationId"] = _yaml_quote(pinpoint_application_id)
    return values


def _pulumi_run(args: list[str]) -> None:
    subprocess.run(args, check=True)


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize Pulumi project and stack YAML in repo root.")
    parser.add_argument("--project", default="passwordless-auth", help="Pulumi project name")
    parser.add_argument("--stack", default="dev", help="Stack name, e.g. dev or prod")
    parser.add_argument("--region", help="AWS region (if omitted, you will be prompted). Example: us-east-2")
    parser.add_argument("--profile", help="AWS CLI profile (if omitted, you will be prompted).")
    parser.add_argument("--force", action="store_true", help="Overwrite existing YAML files")
    parser.add_argument(
        "--init-stack",
        action="store_true",
        help="After writing YAMLs, run 'pulumi stack init' for the stack",
    )
    args = parser.parse_args()

    slug = project_slug(args.project)
    prefix = slug
    root = repo_root_from_scripts_dir()

    print("\n=== config_init.py ===")
    print("Writes Pulumi.yaml and Pulumi.<stack>.yaml. Press Enter to accept defaults.\n")

    region = prompt_with_default(
        "Deploy region",
        args.region.strip() if args.region else "us-east-2",
        explain="AWS region for the user pool and trigger functions.",
    )

    profile = prompt_with_default(
        "AWS profile",
        args.profile.strip() if args.profile else "default",
        explain="AWS CLI profile used by the Pulumi provider.",
    )

    source_email = prompt_required(
        "sourceEmail",
        "no-reply@example.com",
        explain="SES-verified address sign-in codes are sent from.",
    )

    preferred_channel = prompt_with_default(
        "preferredChannel",
        "email",
        explain="Channel used for users that have both an email and a phone number.",
    ).lower()

    pinpoint_application_id = prompt_with_default(
        "pinpointApplicationId",
        "",
        explain="Existing Pinpoint application id (leave empty to create one).",
    )

    origination_number = prompt_with_default(
        "originationNumber",
        "",
        explain="SMS origination number, only required when texting US numbers.",
    )

    written: list[str] = []
    skipped: list[str] = []

    pulumi_yaml_path = root / "Pulumi.yaml"
    if write_text(pulumi_yaml_path, build_pulumi_project_yaml(project_name=slug), force=args.force):
        written.append(pulumi_yaml_path.name)
    else:
        skipped.append(pulumi_yaml_path.name)

    values = stack_values(
        prefix,
        region=region,
        profile=profile,
        source_email=source_email,
        origination_number=origination_number,
        pinpoint_application_id=pinpoint_application_id,
        preferred_channel=preferred_channel,
    )
    stack_path = root / f"Pulumi.{args.stack}.yaml"
    if write_text(stack_path, build_stack_yaml(prefix, values), force=args.force):
        written.append(stack_path.name)
    else:
        skipped.append(stack_path.name)

    print("\n=== Summary (files) ===")
    print(f"Project / config prefix: {slug}")
    if written:
        print("\nWritten/Updated:")
        for name in written:
            print(f"  - {name}")
    if skipped:
        print("\nSkipped (already exist, use --force to overwrite):")
        for name in skipped:
            print(f"  - {name}")

    if args.init_stack:
        print(f"\n[Stack] pulumi stack init {args.stack}")
        _pulumi_run(["pulumi", "stack", "init", args.stack])
    else:
        print("\nTo create the stack, re-run with --init-stack or run:")
        print(f"  pulumi stack init {args.stack}")

    print("")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
