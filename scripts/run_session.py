#!/usr/bin/env python
"""Demo: sessão de disclosure headless contra um irma server local.

Fluxo:
1. Cria a sessão (POST /session) com a autenticação das env vars
2. Escreve o conteúdo do QR no terminal
3. Aguarda o app concluir (statusevents, com fallback para polling)
4. Imprime o resultado

Uso:
    irma server --no-auth &
    IRMA_SERVER_URL=http://localhost:8088 python scripts/run_session.py
"""

import asyncio
import json
import sys
from pathlib import Path

# Adicionar src ao path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from pyirma import PyIrmaError, SessionClient, SessionOptions
from pyirma.config.settings import get_settings
from pyirma.observability.logging import configure_logging, get_logger

DISCLOSURE_REQUEST = {
    "@context": "https://irma.app/ld/request/disclosure/v2",
    "disclose": [[["irma-demo.MijnOverheid.ageLimits.over18"]]],
}


async def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    errors = settings.validate_all()
    if not settings.irma_server_url:
        errors.append("IRMA_SERVER_URL não configurado")
    if errors:
        for error in errors:
            print(f"❌ {error}")
        return 1

    logger = get_logger("pyirma.demo")
    options = SessionOptions(
        method="headless",
        server=settings.irma_server_url,
        language=settings.irma_language,
    )

    async with SessionClient(settings=settings, logger=logger) as client:
        try:
            result = await client.run(DISCLOSURE_REQUEST, options)
        except PyIrmaError as exc:
            print(f"❌ Sessão falhou: {type(exc).__name__}: {exc}")
            return 1

    print("✅ Resultado:")
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
