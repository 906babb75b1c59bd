from loguru import logger
import sys
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Remove a configuração padrão
logger.remove()

# Configuração para logs no console
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=LOG_LEVEL,
)

# Configuração para logs em arquivo rotativo (LOG_DIR vazio desativa)
if LOG_DIR:
    os.makedirs(LOG_DIR, exist_ok=True)
    logger.add(
        os.path.join(LOG_DIR, "payments.log"),
        rotation="10 MB",  # Roda o arquivo quando atinge 10 MB
        retention="10 days",  # Mantém os logs por 10 dias
        compression="zip",  # Comprime os logs antigos
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    )
