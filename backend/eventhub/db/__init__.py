"""
Database layer - declarative base, index management and session scoping.

Import submodules directly (eventhub.db.base, .schema, .session); this
package stays import-free because the models depend on eventhub.db.base.
"""
