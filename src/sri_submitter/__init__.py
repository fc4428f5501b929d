"""
sri_submitter — signed electronic tax document submission to the SRI.

Normalizes and (when needed) repairs a PKCS#12 keystore, signs the prepared
document, submits it to the reception web service and polls the
authorization web service for its final status.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
