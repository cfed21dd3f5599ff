"""polyglot-voice: speak stdin text aloud, switching voice per detected language."""
