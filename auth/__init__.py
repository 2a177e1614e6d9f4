"""
auth — User authentication module.

Provides:
  • Password hashing (bcrypt, run off the event loop)
  • Session token issuing & verification (JWT, HS256)
  • Signup / login payload validation
  • ``AccountService`` orchestrating signup and login
  • Signup / Login API routes
"""
