# Atomic read-then-delete, shared by the single-use stores.
# KEYS[1]: record key
# returns the stored value, or nil if the key was already gone
LUA_GET_AND_DELETE = """
local cur = redis.call('GET', KEYS[1])
if not cur then
  return nil
end
redis.call('DEL', KEYS[1])
return cur
"""
