#!/usr/bin/env python3
"""
Один цикл приёма резюме из почты.

Использование:
    python -m app.scripts.fetch_emails
"""

from app.core.logging_config import configure_logging
from app.db.session import init_db
from app.services.cv_pipeline import CVPipeline


def main():
    """Основная функция"""
    configure_logging()
    print(f"""
╔═══════════════════════════════════════════════════════════════╗
║         ПОЛУЧЕНИЕ РЕЗЮМЕ ИЗ ПОЧТЫ                             ║
╚═══════════════════════════════════════════════════════════════╝
    """)

    init_db()
    pipeline = CVPipeline()
    results = pipeline.run_cycle() or []

    if results:
        print("\nНовые кандидаты:")
        for result in results:
            print(f"  - №{result.candidate_number} {result.full_name or '(имя не найдено)'} ← {result.cv_file}")
    else:
        print("\nНовых резюме не найдено.")

    pipeline.log_stats()
    return results


if __name__ == "__main__":
    main()
