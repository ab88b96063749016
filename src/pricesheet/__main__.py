"""Ponto de entrada para execução do módulo como script."""

import argparse
import logging
import sys

from .config import Config
from .driver import SheetDriver


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pricesheet",
        description="Atualiza os preços de cartas de uma planilha do Google Sheets usando a Scryfall.",
    )
    parser.add_argument("--sheetkey", help="chave da planilha (SPREADSHEET_KEY)")
    parser.add_argument("--sheetname", help="nome da aba (SHEET_NAME); padrão é a primeira aba")
    parser.add_argument("--creds", help="arquivo JSON de credenciais (CREDENTIALS_FILE)")
    parser.add_argument("--token", help="arquivo do token OAuth (TOKEN_FILE)")
    parser.add_argument("--authcode", help="código de autorização para obter um token OAuth")
    parser.add_argument("-v", "--verbose", action="store_true", help="log de depuração")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Função principal: executa uma passada completa pela planilha."""
    args = _parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = Config(
            spreadsheet_key=args.sheetkey,
            sheet_name=args.sheetname,
            credentials_file=args.creds,
            token_file=args.token,
            auth_code=args.authcode,
        )
        with SheetDriver.from_config(config) as driver:
            summary = driver.run()
        print(
            f"{summary.updated} linhas atualizadas, "
            f"{summary.not_found} não encontradas, "
            f"{summary.skipped} ignoradas."
        )
        return 0

    except KeyboardInterrupt:
        print("\nInterrompido.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Erro fatal: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
