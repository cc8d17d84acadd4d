"""Request, Response and Headers."""
