"""
Recruitment Application - бэкенд кадрового агентства с автоматическим приёмом CV из почты.

Структура модуля:
    - core/     : Конфигурация, логирование, права доступа
    - db/       : SQLAlchemy модели и сессии
    - models/   : Pydantic модели (CV, API запросы/ответы)
    - api/      : FastAPI эндпоинты
    - services/ : Бизнес-логика (почта, извлечение текста, разбор CV, поиск, отчёты)
    - scripts/  : CLI скрипты

Запуск API:
    uvicorn app.main:app --reload --port 8000

CLI команды:
    python -m app.scripts.fetch_emails        # Один цикл приёма CV из почты
    python -m app.scripts.create_user         # Создание пользователя API
    python scripts/run_email_watcher.py       # Непрерывный мониторинг почты
"""

__version__ = "1.0.0"
