"""Run the school planner access service: python3 -m schoolplanner"""

import uvicorn

from schoolplanner.config import settings


def main() -> None:
    uvicorn.run("schoolplanner.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
