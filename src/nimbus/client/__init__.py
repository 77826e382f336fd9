"""Client side of Nimbus — session, storage, and weather lookups.

Learn: Create one SessionManager per device and pass it to whatever
needs it. Nothing here is a global.

    session = SessionManager(url, FileStorage(path))
    await session.initialize()
    await session.login(email, password)
    weather = await WeatherClient(session).current("Paris")
"""

from nimbus.client.session import SessionAuth, SessionManager, SessionState, UserSnapshot
from nimbus.client.storage import FileStorage, MemoryStorage
from nimbus.client.weather import WeatherClient

__all__ = [
    "FileStorage",
    "MemoryStorage",
    "SessionAuth",
    "SessionManager",
    "SessionState",
    "UserSnapshot",
    "WeatherClient",
]
