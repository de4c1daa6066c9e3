"""HTTP routers for the FairValue API."""
