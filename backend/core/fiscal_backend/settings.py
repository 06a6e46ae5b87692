from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1", "testserver"]),
)
environ.Env.read_env(BASE_DIR / ".env")

SECRET_KEY = env("SECRET_KEY", default="django-insecure-change-me")

DEBUG = env("DEBUG")
ALLOWED_HOSTS = env("ALLOWED_HOSTS")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "tenancy.apps.TenancyConfig",
    "customers.apps.CustomersConfig",
    "fiscal.apps.FiscalAppConfig",
]

MIDDLEWARE = []

DATABASE_ENGINE = env("DATABASE_ENGINE", default="django.db.backends.sqlite3").strip()

database_password = env("DATABASE_PASSWORD", default="")
cloud_sql_instance = env("CLOUD_SQL_INSTANCE", default="")
database_host = (
    f"/cloudsql/{cloud_sql_instance}"
    if cloud_sql_instance
    else env("DATABASE_HOST", default="127.0.0.1")
)
database_port = "" if cloud_sql_instance else env("DATABASE_PORT", default="5432")

if DATABASE_ENGINE == "django.db.backends.sqlite3":
    DATABASES = {
        "default": {
            "ENGINE": DATABASE_ENGINE,
            "NAME": env("SQLITE_NAME", default=str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DATABASE_ENGINE,
            "NAME": env("DATABASE_NAME", default="fiscal_db"),
            "USER": env("DATABASE_USER", default="fiscal_user"),
            "PASSWORD": database_password,
            "HOST": database_host,
            "PORT": database_port,
            "CONN_MAX_AGE": env.int("DATABASE_CONN_MAX_AGE", default=60),
            "OPTIONS": (
                {}
                if cloud_sql_instance
                else {"sslmode": env("DATABASE_SSLMODE", default="disable")}
            ),
        }
    }

LANGUAGE_CODE = "pt-br"
TIME_ZONE = "America/Sao_Paulo"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "mask_cpf_cnpj": {
            "()": "tenancy.logging.MaskCPFCNPJFilter",
        },
    },
    "formatters": {
        "simple": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
            "filters": ["mask_cpf_cnpj"],
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": env("DJANGO_LOG_LEVEL", default="INFO"),
            "propagate": True,
        },
        "fiscal": {
            "handlers": ["console"],
            "level": env("FISCAL_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
        "tenancy": {
            "handlers": ["console"],
            "level": env("FISCAL_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}

# API-key authentication. A master key grants access to any company, but only
# when the company is named explicitly.
MASTER_API_KEY = env("MASTER_API_KEY", default="").strip()
MASTER_API_KEY_COMPANY_ID = env("MASTER_API_KEY_COMPANY_ID", default="").strip()

# Focus NFe gateway.
FOCUS_NFE_MASTER_TOKEN = env("FOCUS_NFE_MASTER_TOKEN", default="").strip()
FOCUS_NFE_API_URL = env("FOCUS_NFE_API_URL", default="https://api.focusnfe.com.br").strip()

FISCAL_GATEWAY_CLIENT = env(
    "FISCAL_GATEWAY_CLIENT",
    default="fiscal.gateway.focusnfe.FocusNFeGatewayClient",
).strip()
FISCAL_GATEWAY_TIMEOUT_SECONDS = env.float("FISCAL_GATEWAY_TIMEOUT_SECONDS", default=30.0)
FISCAL_TOKEN_ENCRYPTION_KEY = env("FISCAL_TOKEN_ENCRYPTION_KEY", default="").strip()
FISCAL_STUCK_PROCESSING_MINUTES = env.int("FISCAL_STUCK_PROCESSING_MINUTES", default=15)
