import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Replace this process with uvicorn serving the notification API."""
  port = os.getenv("PORT", "3000")
  logger.info("Starting Whisp notify server on port %s", port)
  # exec so uvicorn receives SIGTERM directly from the container runtime.
  os.execvp("uvicorn", ["uvicorn", "whisp.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"])


if __name__ == "__main__":
  main()
