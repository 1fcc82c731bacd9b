"""Entry point for running as a module."""
from song_degrees.api import app
from song_degrees.config import Settings, load_local_env_file
import uvicorn

if __name__ == "__main__":
    load_local_env_file()
    uvicorn.run(app, host="0.0.0.0", port=Settings.from_env().port)
