"""Bot extensions, loaded by name from KymeraBot.setup_hook."""
