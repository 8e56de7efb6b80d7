import argparse
import sys

from specgraph.config import configure_logging
from specgraph.db.database import SessionLocal
from specgraph.dependencies import get_consistency_analyzer, get_storage
from specgraph.application.event_handlers import register_event_handlers
from specgraph.domain.errors import DomainError

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the consistency check for a project")
    parser.add_argument("project_id", help="ID of the project to check")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    register_event_handlers()

    db = SessionLocal()
    try:
        analyzer = get_consistency_analyzer(get_storage(db))
        report = analyzer.check_project(args.project_id)
    except DomainError as e:
        print(f"Check failed: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(report.model_dump_json(indent=2))
    return 1 if report.statistics.errors else 0

if __name__ == "__main__":
    sys.exit(main())
