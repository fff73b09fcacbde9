"""Log collection configuration, typed fields, structured loggers and the collection service."""