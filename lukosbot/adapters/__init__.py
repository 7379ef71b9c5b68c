"""Platform adapters feeding inbound messages to the bot."""
