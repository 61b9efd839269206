"""
Backoffice — Service Core for the Video-Content Admin Console
===============================================================
Batch jobs and data access behind the staff backoffice: gamification event
translations fanned out to every target language, the Galaxy content
import with its free-episode rule, and the locale-campaign cascade delete.

Package layout::

    backoffice/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Target languages, setting keys, statuses
    ├── errors.py          # Exception taxonomy with machine-readable kinds
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # All ORM models
    │   └── seed.py        # Default app_settings seeder
    ├── engine/
    │   ├── eligibility.py # Free-episode rule
    │   └── fanout.py      # Translation fan-out engine
    ├── services/
    │   ├── translation_service.py  # Event catalog reads + translation store
    │   ├── event_service.py        # Event and category management
    │   ├── translation_provider.py # Mock / OpenAI text translation
    │   ├── settings_service.py     # app_settings reads and writes
    │   ├── galaxy_client.py        # Galaxy content feed (httpx)
    │   ├── import_service.py       # Galaxy import orchestration
    │   ├── campaign_service.py     # Locale-campaign cascade delete
    │   └── admin_service.py        # Audit log helpers
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT guard, engine, config, collaborators
        └── routes/        # Admin REST endpoints
"""

__version__ = "0.1.0"
