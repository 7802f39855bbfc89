"""Document store, page tree and search for MdWiki."""
