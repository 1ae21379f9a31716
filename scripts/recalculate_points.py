"""
전체 딜 포인트 재계산 배치

요율표 변경 후 실행합니다. 딜 단위로 커밋되며 실패한 딜은 결과의 errors 에 남습니다.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from partnerapi.containers import Container
from partnerapi.logging_config import setup_logging


def main() -> int:
    container = Container()
    setup_logging(container.config.config().LOG_LEVEL)
    try:
        service = container.services.recalculation_service()
        result = service.recalculate_all_deals()
        print(f"Recalculated {result.updated} deals, {len(result.errors)} errors")
        for error in result.errors:
            print(f"  - {error}")
        return 1 if result.errors else 0
    finally:
        container.shutdown_resources()


if __name__ == "__main__":
    sys.exit(main())
