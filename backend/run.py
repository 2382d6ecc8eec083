import sys
from pathlib import Path

# Ensure we can import the package when run from a checkout
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))


def main():
    from careerpath.config import settings

    print("Starting CareerPath Advisor...")
    print(f"Server: http://localhost:{settings.PORT}")
    print(f"API Docs: http://localhost:{settings.PORT}/docs")
    print("=" * 50)

    try:
        import uvicorn

        uvicorn.run(
            "careerpath.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.RELOAD,
            log_level=settings.LOG_LEVEL.lower()
        )

    except ImportError as e:
        print(f"Import error: {e}")
        print("Make sure you've installed the package: pip install -e .")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
