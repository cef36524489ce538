#!/usr/bin/env python3
"""
credscore CLI — Offline command-line interface for the credential trust score engine.

State (issuers and credentials) lives in a JSON state file.

Commands:
    keygen      - Generate an issuer keypair
    issuer      - Register, deactivate or list issuers
    issue       - Issue and sign a credential for a subject
    verify      - Check a stored credential's signature and status
    revoke      - Revoke a credential
    score       - Compute a subject's score
    collateral  - Collateral factor for a score
    stats       - Store statistics
"""

import argparse
import json
import os
import sys
from typing import Optional

from .config import Settings
from .store import DEFAULT_REVOCATION_REASON


def _output(data: dict, args: argparse.Namespace, human_fn=None):
    """Output data as JSON or pretty-printed."""
    if getattr(args, 'json', False):
        print(json.dumps(data, indent=2, default=str))
    elif human_fn:
        human_fn(data)
    else:
        print(json.dumps(data, indent=2, default=str))


def _load_engine(state_file: str):
    from .engine import TrustScoreEngine

    if os.path.exists(state_file):
        return TrustScoreEngine.load(state_file)
    return TrustScoreEngine()


# ─── Commands ──────────────────────────────────────────────────────

def cmd_keygen(args):
    """Generate an issuer identity."""
    from .identity import IssuerIdentity

    identity = IssuerIdentity()
    identity.save(args.output)
    result = {"address": identity.address, "public_key": identity.public_key_hex,
              "keyfile": args.output}

    def human(d):
        print(f"✅ Generated issuer identity: {d['address']}")
        print(f"   Public key: {d['public_key'][:16]}...")
        print(f"   Saved to:   {d['keyfile']}")

    _output(result, args, human)
    return result


def cmd_issuer(args):
    """Manage the issuer registry."""
    from .identity import IssuerIdentity

    engine = _load_engine(args.state)

    if args.issuer_command == "register":
        identity = IssuerIdentity.load(args.keyfile)
        record = engine.issuers.register(identity.public_key_hex, trust_score=args.trust,
                                         display_name=args.name, authorized_types=args.types)
        engine.save(args.state)
        result = record.to_dict()

        def human(d):
            print(f"✅ Registered issuer {d['address']}")
            print(f"   Types: {', '.join(d['authorized_types']) or '-'}")

    elif args.issuer_command == "deactivate":
        record = engine.issuers.deactivate(args.address)
        engine.save(args.state)
        result = record.to_dict()

        def human(d):
            print(f"🚫 Deactivated issuer {d['address']}")

    else:
        result = {"issuers": engine.issuers.to_dict()}

        def human(d):
            if not d["issuers"]:
                print("No issuers registered")
            for r in d["issuers"]:
                flag = "active" if r["active"] else "inactive"
                print(f"  {r['address']}  {r['display_name'] or '-':20} {flag:8} "
                      f"trust={r['trust_score']}  {', '.join(r['authorized_types'])}")

    _output(result, args, human)
    return result


def cmd_issue(args):
    """Issue a credential signed with a local issuer key."""
    from .identity import IssuerIdentity

    engine = _load_engine(args.state)
    identity = IssuerIdentity.load(args.keyfile)
    request = engine.handler.request_credential(args.subject, args.type.upper(),
                                                issuer=identity.address,
                                                credential_id=args.id)
    issued = engine.submit_credential(request, identity.sign_digest(request.digest))
    engine.save(args.state)
    result = issued.to_dict()

    def human(d):
        c = d["credential"]
        print("✅ Credential issued")
        print(f"   ID:      {c['id']}")
        print(f"   Type:    {c['type']} (weight {c['weight']})")
        print(f"   Issuer:  {c['issuer']}")
        print(f"   Subject: {c['subject']}")
        print(f"   Expires: {c['expires_at']}")

    _output(result, args, human)
    return result


def cmd_verify(args):
    """Verify a stored credential."""
    from .codec import CredentialFields, digest, encode
    from .errors import NotFoundError
    from .signature import verify

    engine = _load_engine(args.state)
    credential = engine.store.get(args.credential_id)
    if credential is None:
        raise NotFoundError(args.credential_id)

    issuer = engine.issuers.get(credential.issuer)
    sig_valid = False
    if issuer is not None and credential.signature:
        fields = CredentialFields(credential.type, credential.issuer, credential.subject,
                                  credential.issued_at, credential.expires_at)
        sig_valid = verify(digest(encode(fields, engine.catalog)), credential.signature,
                           issuer.public_key)
    status = engine.store.status_of(credential)

    result = {
        "credential_id": credential.id,
        "signature_valid": sig_valid,
        "issuer_active": bool(issuer and issuer.active),
        "status": status.value,
        "valid": sig_valid and status.value == "active",
    }

    def human(d):
        mark = "✅ VALID" if d["valid"] else "❌ INVALID"
        print(f"{mark}: {d['credential_id']}")
        print(f"   Signature: {'ok' if d['signature_valid'] else 'bad'}")
        print(f"   Status:    {d['status']}")

    _output(result, args, human)
    return result


def cmd_revoke(args):
    """Revoke a credential."""
    engine = _load_engine(args.state)
    credential = engine.revoke(args.credential_id, args.reason)
    engine.save(args.state)
    result = credential.to_dict()

    def human(d):
        print(f"🚫 Revoked: {d['id']}")
        print(f"   Reason: {d['revocation_reason']}")

    _output(result, args, human)
    return result


def cmd_score(args):
    """Compute a subject's score and collateral factor."""
    engine = _load_engine(args.state)
    view = engine.get_score_details(args.subject)
    result = view.to_dict()
    result["collateral_factor"] = engine.collateral_factor(view.score)

    def human(d):
        print(f"📊 Score for {d['subject']}")
        print(f"   Score:             {d['score']}")
        print(f"   Valid credentials: {d['credential_count']}")
        print(f"   Collateral factor: {d['collateral_factor']}%")
        for c in d["contributions"]:
            print(f"   + {c['contribution']:.1f}  {c['type']} (decay {c['decay_factor']:.2f})")

    _output(result, args, human)
    return result


def cmd_collateral(args):
    """Look up the collateral tier for a score."""
    from .collateral import CollateralPolicy

    tier = CollateralPolicy().tier_for_score(args.score)
    result = {"score": args.score, **tier.to_dict()}

    def human(d):
        print(f"Score {d['score']}: {d['name']} tier, collateral factor {d['factor']}%")

    _output(result, args, human)
    return result


def cmd_stats(args):
    """Store statistics."""
    engine = _load_engine(args.state)
    result = engine.stats().to_dict()
    result["issuers"] = len(engine.issuers)

    def human(d):
        print("📈 Credential store")
        print(f"   Total:    {d['total']}")
        print(f"   Active:   {d['active']}")
        print(f"   Expired:  {d['expired']}")
        print(f"   Revoked:  {d['revoked']}")
        print(f"   Subjects: {d['distinct_subjects']}")
        print(f"   Issuers:  {d['issuers']}")

    _output(result, args, human)
    return result


def build_parser() -> argparse.ArgumentParser:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(
        prog="credscore",
        description="credscore — identity-backed trust score engine",
    )
    parser.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    parser.add_argument("-s", "--state", default=settings.state_file, help="State JSON file")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("keygen", help="Generate an issuer keypair")
    p.add_argument("-o", "--output", default="issuer.json", help="Keyfile to write")

    p = sub.add_parser("issuer", help="Manage issuers")
    isub = p.add_subparsers(dest="issuer_command", required=True)
    ip = isub.add_parser("register", help="Register an issuer")
    ip.add_argument("-k", "--keyfile", required=True, help="Issuer keyfile")
    ip.add_argument("-t", "--types", nargs="+", default=[], help="Authorized credential types")
    ip.add_argument("-n", "--name", default="", help="Display name")
    ip.add_argument("--trust", type=int, default=100, help="Trust score 0-100")
    ip = isub.add_parser("deactivate", help="Deactivate an issuer")
    ip.add_argument("address", help="Issuer address")
    isub.add_parser("list", help="List issuers")

    p = sub.add_parser("issue", help="Issue a credential")
    p.add_argument("subject", help="Subject id (0x + 40 hex)")
    p.add_argument("type", help="Credential type, e.g. BANK_BALANCE_HIGH")
    p.add_argument("-k", "--keyfile", required=True, help="Issuer keyfile")
    p.add_argument("--id", help="Credential id (default: random)")

    p = sub.add_parser("verify", help="Verify a stored credential")
    p.add_argument("credential_id", help="Credential id")

    p = sub.add_parser("revoke", help="Revoke a credential")
    p.add_argument("credential_id", help="Credential id")
    p.add_argument("--reason", default=DEFAULT_REVOCATION_REASON, help="Revocation reason")

    p = sub.add_parser("score", help="Compute a subject's score")
    p.add_argument("subject", help="Subject id")

    p = sub.add_parser("collateral", help="Collateral factor for a score")
    p.add_argument("score", type=int, help="Score 0-1000")

    sub.add_parser("stats", help="Store statistics")

    return parser


def main(argv: Optional[list[str]] = None) -> Optional[dict]:
    """CLI entry point. Returns result dict for testing."""
    from .errors import CredScoreError
    from .log import setup_structured_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_structured_logging(args.log_level)

    commands = {
        "keygen": cmd_keygen,
        "issuer": cmd_issuer,
        "issue": cmd_issue,
        "verify": cmd_verify,
        "revoke": cmd_revoke,
        "score": cmd_score,
        "collateral": cmd_collateral,
        "stats": cmd_stats,
    }

    try:
        return commands[args.command](args)
    except FileNotFoundError as e:
        print(f"❌ File not found: {e}", file=sys.stderr)
        sys.exit(1)
    except (CredScoreError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
