import os

class Config:
    # Учётные данные администратора
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")

    # Порт панели управления
    WEB_PORT = int(os.getenv("WEB_PORT", "57230"))

    # Где слушает мок-сервер
    MOCK_HOST = os.getenv("MOCK_HOST", "0.0.0.0")
    MOCK_PORT = int(os.getenv("MOCK_PORT", "8080"))

    # Каталог с ответами: один файл = один ответ, рядом опционально <файл>.meta.json
    RESPONSES_DIR = os.getenv("RESPONSES_DIR", "responses")

    # Путь к БД журнала запросов
    DB_PATH = os.getenv("DB_PATH", "data/db.sqlite")

    # Уровень логирования
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

config = Config()
