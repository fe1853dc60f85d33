"""HTTP framework adapters exposing stored rates and logs."""
