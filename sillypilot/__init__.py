"""
SillyPilot - Roleplay Chat Client Core

Character card handling for the SillyPilot chat client: V2 cards embedded
in PNG avatars, local character storage, and remote character repositories.
"""

__version__ = "0.1.0"
