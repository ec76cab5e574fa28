"""EduVoice AI backend."""
