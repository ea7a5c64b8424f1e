"""Pure scoring and finance functions. Nothing in here touches a store."""
