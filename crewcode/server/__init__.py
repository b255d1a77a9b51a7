"""Flask REST API and Socket.IO gateway for crewcode."""
