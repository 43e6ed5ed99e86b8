import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()


def main():
    uvicorn.run(
        "showfeed.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )


if __name__ == "__main__":
    main()
