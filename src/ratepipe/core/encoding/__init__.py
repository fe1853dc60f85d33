"""Wire encodings for value lists and logs."""
