"""Settings domain - key/value configuration rows and the typed email settings built from them"""
