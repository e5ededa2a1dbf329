"""HTTP clients and the request pipeline they share."""
