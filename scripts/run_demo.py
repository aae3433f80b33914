"""
Quick demo script: run the Mindful companion locally.

Usage:
    python scripts/run_demo.py

Provider keys are read from the environment or a .env file
(OPENROUTER_API_KEY, HF_TOKEN). Without keys every reply is the
offline fallback message.
"""

import uvicorn


def main():
    print("=" * 60)
    print("  Mindful Companion — wellbeing chat + guided exercises")
    print("=" * 60)
    print()
    print("Starting server at http://localhost:8000")
    print("API docs: http://localhost:8000/docs")
    print("Press Ctrl+C to stop.")
    print()

    uvicorn.run(
        "mindful.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
