"""Load environment variables from the project's .env file."""

from __future__ import annotations

from dotenv import load_dotenv

# Load default .env (located at project root)
load_dotenv()
