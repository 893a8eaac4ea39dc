"""RunBox: register JavaScript functions and execute them over HTTP."""
