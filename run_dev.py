# run_dev.py
import os
import socket

from dotenv import load_dotenv

# 1) .env antes de importar settings
load_dotenv(".env")

# factory: la app se arma al arrancar uvicorn, no al importar
APP_FACTORY = os.getenv("APP_FACTORY", "app.main:create_app")


def _lan_ip() -> str:
    """Obtiene IP LAN real sin depender de hostname/DNS."""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


def main():
    import uvicorn
    from app.core.config import settings

    # 👇 reload solo si se pide (RELOAD=1)
    reload_flag = os.getenv("RELOAD", "0").strip().lower() in ("1", "true", "yes", "on")

    print(f"🔗 API local: http://127.0.0.1:{settings.PORT}")
    print(f"📱 API LAN:   http://{_lan_ip()}:{settings.PORT}")
    print(f"🌀 reload={'ON' if reload_flag else 'OFF'}")

    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=reload_flag,
        reload_dirs=["app"],
        reload_excludes=[".venv", ".git", "__pycache__", "media"],
        timeout_keep_alive=30,
        timeout_graceful_shutdown=15,
        log_level=settings.LOG_LEVEL.lower(),
        lifespan="on",
    )


if __name__ == "__main__":
    main()
