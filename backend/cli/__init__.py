"""Terminal display for running debates from the command line."""
