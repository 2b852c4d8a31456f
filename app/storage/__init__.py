"""Document storage core: key/value adapter, secondary indexes, query fallback"""
