"""
Django settings for the offchain resolver client.

Everything is read from the environment (or a local .env file).
"""
import os

from dotenv import load_dotenv

load_dotenv(override=True)

# ---------------- Security ------------------------------------------------- #

# No sessions, forms or signing happen in this project.
SECRET_KEY = os.getenv('SECRET_KEY', 'offchain-resolver-cli')

DEBUG = os.getenv('DEBUG', 'false').lower() == 'true'

ALLOWED_HOSTS = []


# ---------------- Application definition ---------------------------------- #

INSTALLED_APPS = [
  # project apps
  'resolver',
]

DATABASES = {}

USE_TZ = True
TIME_ZONE = 'UTC'


# ---------------- Logging ------------------------------------------------- #

LOGGING = {
  'version': 1,
  'disable_existing_loggers': False,
  'formatters': {
    'progress': {
      'format': '%(message)s',
    },
  },
  'handlers': {
    'progress_console': {
      'class': 'logging.StreamHandler',
      'formatter': 'progress',
    },
  },
  'loggers': {
    'resolver': {
      'handlers': ['progress_console'],
      'level': os.getenv('LOG_LEVEL', 'INFO'),
      'propagate': False,
    },
  },
}


# ---------------- Web3 / Resolution Config -------------------------------- #

JSON_RPC_URL = os.getenv('JSON_RPC_URL', '')

# ENS registry (same address on mainnet and testnets)
REGISTRY_ADDRESS = os.getenv('REGISTRY_ADDRESS', '0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e')

# Seconds; callers bound every blocking call
RPC_TIMEOUT = float(os.getenv('RPC_TIMEOUT', '30'))
GATEWAY_TIMEOUT = float(os.getenv('GATEWAY_TIMEOUT', '30'))
