"""
Kargo modules - each one a black box behind the interface exported by its
package ``__init__``.
"""
