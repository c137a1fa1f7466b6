#!/usr/bin/env python3
"""
Cadastrar (ou redefinir a senha de) um administrador do painel.

Uso:
  python scripts/add_admin.py --email admin@dominio.com [--password segredo] [--remove]
"""
from __future__ import annotations

import argparse
import getpass
import sys

from cms.domain.validation import ValidationFailure
from cms.repositories.local_storage import LocalStorage
from cms.services.account_service import AccountService


def main() -> None:
    ap = argparse.ArgumentParser(description="Gerenciar administradores do painel")
    ap.add_argument("--email", required=True, help="Email do administrador")
    ap.add_argument("--password", help="Senha (min. 6 caracteres); pedida no terminal se omitida")
    ap.add_argument("--remove", action="store_true", help="Remover o administrador em vez de cadastrar")
    ap.add_argument("--storage", help="Arquivo de armazenamento (default: STORAGE_PATH)")
    args = ap.parse_args()

    accounts = AccountService(LocalStorage(args.storage))
    if args.remove:
        revoked = accounts.remove_admin(args.email, current_email="")
        print(f"OK: administrador {args.email.strip().lower()} removido ({len(revoked)} sessoes encerradas)")
        return

    password = args.password or getpass.getpass("Senha: ")
    try:
        email = accounts.add_admin(args.email, password)
    except ValidationFailure as exc:
        raise SystemExit(exc.message)
    print("OK: administrador cadastrado")
    print(f"  Email: {email}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
