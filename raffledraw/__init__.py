"""Lead-capture raffle administration backend."""
